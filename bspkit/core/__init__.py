from bspkit.core import bsplines
from bspkit.core import evaluation
from bspkit.core import refinement

__all__ = ['bsplines', 'evaluation', 'refinement']
