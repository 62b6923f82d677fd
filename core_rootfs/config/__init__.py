from .models import Architecture, Distribution, ProvisionConfig

__all__ = [
    "Architecture",
    "Distribution",
    "ProvisionConfig",
]
