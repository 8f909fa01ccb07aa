from .products import (
    L2Localizable, H1SemiLocalizable, BoundaryL2Localizable,
    L2Assemblable, H1SemiAssemblable, BoundaryL2Assemblable,
    l2_norm, h1_semi_norm, l2_error, h1_semi_error, eoc,
)
from .advection import AdvectionFvOperator, explicit_euler_step
