from .operators import Codim0Integral, Codim1CouplingIntegral, Codim1BoundaryIntegral
from .functionals import Codim0IntegralFunctional, Codim1IntegralFunctional
from .evaluations import (Product, Elliptic, ProductFunctional, BoundaryProduct, NeumannFunctional,
                          SIPGCoupling, SIPGDirichletBoundary, SIPGDirichletFunctional)
from .fluxes import (NumericalLambdaFlux, NumericalUpwindFlux, NumericalLaxFriedrichsFlux,
                     NumericalEngquistOsherFlux, NumericalVijayasundaramFlux, make_numerical_flux)
from .advection_fv import (LocalAdvectionFvCouplingOperator,
                           LocalAdvectionFvBoundaryTreatmentByCustomNumericalFluxOperator)
