"""One-call entry points for building sheaves from DSL source.

Examples:
    >>> A = [[1, 0, 0, 0]]
    >>> sheaf = cellular_sheaf('''
    ...     x::Stalk{4}, y::Stalk{4}, z::Stalk{4}
    ...     A(x) == A(y)
    ...     A(x) == A(z)
    ...     A(y) == A(z)
    ... ''', A=A)
    >>> sheaf.shape
    (3, 12)
"""

from typing import Optional, Sequence, Union

from .dsl.parser import Bindings, parse_sheaf_expression
from .dsl.semantic import construct
from .sheaf.data_structures import CellularSheaf
from .sheaf.potential import Potential, PotentialSheaf
from .utils.profiling import profile_time


@profile_time()
def cellular_sheaf(source: Union[str, Sequence[str]], /, **matrices) -> CellularSheaf:
    """Parse and construct a CellularSheaf.

    Args:
        source: DSL program text or a sequence of statements
        **matrices: Restriction-map matrices, bound in keyword order

    Raises:
        SheafDSLError: On any syntax or semantic error
    """
    return construct(parse_sheaf_expression(source, matrices))


def cellular_sheaf_from_bindings(source: Union[str, Sequence[str]], bindings: Bindings = None,
                                 potentials: Optional[Sequence[Potential]] = None):
    """Like :func:`cellular_sheaf` but with explicit bindings.

    Useful when map names are not valid Python identifiers or when binding
    order must be controlled. Passing ``potentials`` (one per equation)
    yields a :class:`PotentialSheaf`.
    """
    return construct(parse_sheaf_expression(source, bindings), potentials)


def potential_sheaf(source: Union[str, Sequence[str]], potentials: Sequence[Potential], /,
                    **matrices) -> PotentialSheaf:
    """Parse and construct a PotentialSheaf, one potential per equation."""
    return construct(parse_sheaf_expression(source, matrices), potentials)
