from bspkit.utilities import checks

__all__ = ['checks']
