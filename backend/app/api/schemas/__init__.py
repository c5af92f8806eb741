"""Request/response models, one module per router."""
