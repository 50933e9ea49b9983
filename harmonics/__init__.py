from .bot import HarmonicsBot

__all__ = ["HarmonicsBot"]
