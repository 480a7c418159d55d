from .image_validator import SlipImageValidator

__all__ = ["SlipImageValidator"]
