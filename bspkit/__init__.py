# -*- coding: UTF-8 -*-
__all__     = ['__version__', 'core', 'settings', 'spline', 'utilities',
               'SplineCurve', 'SplineSurface', 'SplineVolume']

from bspkit.version import __version__

from bspkit import core
from bspkit import settings
from bspkit import spline
from bspkit import utilities

from bspkit.spline import SplineCurve, SplineSurface, SplineVolume
