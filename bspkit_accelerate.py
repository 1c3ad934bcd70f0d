import argparse
import os
from subprocess import run as sub_run
import shutil
import sysconfig

from bspkit.settings import BSPKIT_BACKENDS, BSPKIT_DEFAULT_BACKEND

libdir = sysconfig.get_config_var('LIBDIR')

#The purpose of this file is to be launched after an editable installation of BSPKIT, to pyccelise all the BSPKIT kernels.
#This file is useless during a classic installation with BSPKIT_BACKEND=fortran (or c), because the kernels are then
#pyccelised in the construction folder.

compiled_languages = [name for name, backend in BSPKIT_BACKENDS.items() if backend['name'] == 'pyccel']
default_language   = BSPKIT_DEFAULT_BACKEND.get('language', 'fortran')

parser = argparse.ArgumentParser(
    formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    description="Accelerate all computational kernels in BSPKIT using Pyccel (editable install only)"
)

# Add Argument --language at the pyccel command
parser.add_argument('--language',
                    type=str,
                    default=default_language,
                    choices=compiled_languages,
                    action='store',
                    dest='language',
                    help='Language used to pyccelize all the _kernels files'
                    )

# Add flag --openmp at the pyccel command
parser.add_argument('--openmp',
                    default=False,
                    action='store_true',
                    dest='openmp',
                    help="Use OpenMP multithreading in generated code."
                    )

# Read input arguments
args = parser.parse_args()

if shutil.which('pyccel') is None:
    parser.error("pyccel not found: install it with 'pip install pyccel'")

# get the absolute path to the bspkit package directory
bspkit_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'bspkit')

print("\nNOTE: This script should only be used if BSPKIT was installed in editable mode.\n")

# Define all the parameters of the command in the parameters array
parameters = ['--language', args.language, '--flags', BSPKIT_BACKENDS[args.language]['flags']]

# check if the flag --openmp is passed and add it to the argument if it's the case
if args.openmp:
    parameters.append('--openmp')

# Append libdir
parameters.append('--libdir')
parameters.append(libdir)

# search in the bspkit folder all the files ending with the tag _kernels.py
for path, subdirs, files in os.walk(bspkit_path):
    for name in files:
        if name.endswith('_kernels.py'):
            print('  Pyccelize file: ' + os.path.join(path, name))
            sub_run([shutil.which('pyccel'), 'compile', os.path.join(path, name), *parameters], shell=False, check=True)
print()
