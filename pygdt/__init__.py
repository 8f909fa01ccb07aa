"""pygdt: grid-walking assembly of finite element and finite volume discretizations."""
import logging

from pygdt.config import AssemblyConfig, configure_logging, get_config, set_config
from pygdt.core import GridView, Mesh
from pygdt.discretefunction import DiscreteFunction, interpolate
from pygdt.utils.meshgen import make_cube_grid

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = ["AssemblyConfig", "configure_logging", "get_config", "set_config", "GridView", "Mesh",
           "DiscreteFunction", "interpolate", "make_cube_grid", "__version__"]
