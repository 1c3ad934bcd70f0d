#---------------------------------------------------------------------------#
# This file is part of BSPKIT which is released under MIT License. See the  #
# LICENSE file for full license details.                                    #
#---------------------------------------------------------------------------#
import os

__all__ = ('BSPKIT_BACKENDS', 'BSPKIT_DEFAULT_BACKEND', 'BSPKIT_DEFAULTS',
           'backend_from_environ',
           'get_default')

#==============================================================================

# ... defining BSPKIT backends
BSPKIT_BACKEND_PYTHON  = {'name': 'python', 'tag': 'python', 'openmp': False}

BSPKIT_BACKEND_FORTRAN = {'name'    : 'pyccel',
                          'language': 'fortran',
                          'flags'   : '-O3',
                          'tag'     : 'fortran',
                          'openmp'  : False}

BSPKIT_BACKEND_C       = {'name'    : 'pyccel',
                          'language': 'c',
                          'flags'   : '-O3',
                          'tag'     : 'c',
                          'openmp'  : False}
# ...

#==============================================================================

# List of all available backends for accelerating the kernels
BSPKIT_BACKENDS = {
    'python'  : BSPKIT_BACKEND_PYTHON,
    'fortran' : BSPKIT_BACKEND_FORTRAN,
    'c'       : BSPKIT_BACKEND_C,
}

#==============================================================================
def backend_from_environ(default='python'):
    """
    Backend named by the environment variable BSPKIT_BACKEND, or the default
    one if the variable is not set.
    """
    name = os.environ.get('BSPKIT_BACKEND', default).lower()
    try:
        return BSPKIT_BACKENDS[name]
    except KeyError:
        raise ValueError(f"Unknown backend '{name}' in BSPKIT_BACKEND. Available backends: {list(BSPKIT_BACKENDS)}") from None

# Backend used when none is requested explicitly
BSPKIT_DEFAULT_BACKEND = backend_from_environ()

#==============================================================================

# Numerical defaults shared by the user-facing functions
BSPKIT_DEFAULTS = {
    # collocation entries below this threshold are set to zero
    'roundoff_tol' : 1e-14,
    # maximum displacement of the control points accepted by knot removal
    'remove_tol'   : 1e-10,
    # largest polynomial degree accepted by the argument checks
    'max_degree'   : 64,
    # validate the arguments of the user-facing functions
    'check_args'   : os.environ.get('BSPKIT_CHECK_ARGS', '1') not in ('0', 'false', 'False'),
}

#==============================================================================
def get_default(key):
    """
    Return the default value of a numerical setting.

    Parameters
    ----------
    key : str
        One of 'roundoff_tol', 'remove_tol', 'max_degree', 'check_args'.

    Returns
    -------
    value : float | int | bool
        Current value in BSPKIT_DEFAULTS.
    """
    try:
        return BSPKIT_DEFAULTS[key]
    except KeyError:
        raise KeyError(f"Unknown setting '{key}'. Available settings: {list(BSPKIT_DEFAULTS)}") from None
