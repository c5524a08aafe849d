"""Resource WebSite API — auth, resource listings, uploads and resource management."""
