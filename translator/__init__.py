"""Document, image and audio translation worker."""
