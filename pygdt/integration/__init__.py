from .quadrature import (QuadratureRule, rule, facet_rule, line_rule, tri_rule,
                         quad_rule, segment_rule, integrate)

__all__ = ['QuadratureRule', 'rule', 'facet_rule', 'line_rule', 'tri_rule',
           'quad_rule', 'segment_rule', 'integrate']
