"""Domain services: catalog persistence, lessons, authorization and media."""
