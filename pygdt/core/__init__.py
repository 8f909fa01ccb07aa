from .mesh import Mesh
from .gridview import GridView, GridViewInterface, Entity, Intersection
from .geometry import ElementGeometry, FacetGeometry
__all__=['Mesh','GridView','GridViewInterface','Entity','Intersection','ElementGeometry','FacetGeometry']
