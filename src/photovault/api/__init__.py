"""HTTP surface for the object storage core."""
