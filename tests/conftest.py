import sys
import os

# Make the package importable when running pytest from a source checkout
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hypothesis import settings

settings.register_profile("chip8", deadline=None)
settings.load_profile("chip8")
