"""Resource operations, one module per Planka resource."""
