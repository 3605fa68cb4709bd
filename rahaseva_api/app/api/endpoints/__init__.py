"""Domain routers, one module per resource."""
