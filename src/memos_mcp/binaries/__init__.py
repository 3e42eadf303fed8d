"""Release binary acquisition: platform mapping, download, verification and caching."""
