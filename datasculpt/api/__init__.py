"""HTTP API for DataSculpt."""
