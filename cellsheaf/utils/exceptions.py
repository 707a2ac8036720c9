"""Custom exception hierarchy for cellsheaf.

Every exception raised by the package inherits from CellSheafError, which
carries a message, a context dictionary with the offending names or values,
and a recoverable flag.

Exception Categories:
- ValidationError: Bad numeric input (shapes, lengths, non-finite values)
- ComputationError: Numerical computation failures
- ConvergenceError: Iterative solver exhausted its budget
- ConfigurationError: Invalid solver or package configuration
- SheafDSLError: Parse and semantic errors raised while compiling the DSL
"""

from typing import Optional, Any, Dict


class CellSheafError(Exception):
    """Base exception for all cellsheaf errors.

    Attributes:
        message: Error message
        context: Additional context information
        recoverable: Whether the error is potentially recoverable
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        recoverable: bool = False
    ):
        super().__init__(message)
        self.message = message
        self.context = dict(context) if isinstance(context, dict) else {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base_msg = self.message
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" (Context: {context_str})"
        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "recoverable": self.recoverable,
        }


class ValidationError(CellSheafError):
    """Raised when numeric input validation fails.

    Examples:
        - Vector length does not match the total stalk dimension
        - Matrix with more than two dimensions
        - NaN or infinity entries
    """

    def __init__(
        self,
        message: str,
        parameter: Optional[str] = None,
        expected: Optional[Any] = None,
        actual: Optional[Any] = None,
        **kwargs
    ):
        context = kwargs.get('context', {})
        if parameter:
            context['parameter'] = parameter
        if expected is not None:
            context['expected'] = expected
        if actual is not None:
            context['actual'] = actual

        super().__init__(message, context, recoverable=True)


class ShapeError(ValidationError):
    """Raised when a restriction map does not fit its coboundary block."""
    pass


class ComputationError(CellSheafError):
    """Raised when numerical computation fails."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        values: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        context = kwargs.get('context', {})
        if operation:
            context['operation'] = operation
        if values:
            context.update(values)

        super().__init__(message, context, recoverable=False)


class ConfigurationError(CellSheafError):
    """Raised when solver or package configuration is invalid."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        **kwargs
    ):
        context = kwargs.get('context', {})
        if config_key:
            context['config_key'] = config_key
        if config_value is not None:
            context['config_value'] = config_value

        super().__init__(message, context, recoverable=True)


class ConvergenceError(CellSheafError):
    """Raised when an iterative solver fails to converge.

    The nearest-section projection raises this when conjugate gradient
    exceeds its iteration cap, typically because the requested constraint
    right-hand side lies outside the image of the coboundary.
    """

    def __init__(
        self,
        message: str,
        algorithm: Optional[str] = None,
        iterations: Optional[int] = None,
        tolerance: Optional[float] = None,
        **kwargs
    ):
        context = kwargs.get('context', {})
        if algorithm:
            context['algorithm'] = algorithm
        if iterations is not None:
            context['iterations'] = iterations
        if tolerance is not None:
            context['tolerance'] = tolerance

        super().__init__(message, context, recoverable=True)


# DSL errors

class SheafDSLError(CellSheafError):
    """Base class for errors raised while compiling sheaf DSL source."""

    def __init__(self, message: str, **context):
        super().__init__(message, {k: v for k, v in context.items() if v is not None})


class SheafSyntaxError(SheafDSLError):
    """Raised when source text does not match the DSL grammar."""
    pass


class MalformedStatementError(SheafSyntaxError):
    """A statement is neither a declaration list nor an equation."""

    def __init__(self, statement: str, line: Optional[int] = None, reason: Optional[str] = None):
        message = f"Line {statement!r} is malformed."
        if reason:
            message += f" {reason}"
        super().__init__(message, statement=statement, line=line)
        self.statement = statement
        self.line = line


class InvalidProductError(SheafSyntaxError):
    """A product is not of the form A(x) or A*x."""

    def __init__(self, product: str, line: Optional[int] = None):
        super().__init__(
            f"Term {product!r} is an invalid product. A product is of form A*x or A(x).",
            product=product,
            line=line,
        )
        self.product = product
        self.line = line


class SemanticError(SheafDSLError):
    """Base class for name resolution and type/dimension checking errors."""
    pass


class DuplicateDeclarationError(SemanticError):
    """A name is declared more than once in the context."""

    def __init__(self, name: str):
        super().__init__(f'Variable: "{name}" has already been declared.', name=name)
        self.name = name


class UnsupportedTypeError(SemanticError):
    """A typed declaration uses a type other than the supported ones."""

    def __init__(self, name: str, type_name: str, supported=("Stalk",)):
        supported_str = ", ".join(f'"{t}"' for t in supported)
        super().__init__(
            f'Variable "{name}" type "{type_name}" is unsupported. '
            f'Current types include: {supported_str} (Vertex Stalk).',
            name=name,
            type_name=type_name,
        )
        self.name = name
        self.type_name = type_name


class UndefinedReferenceError(SemanticError):
    """An equation references a name that was never declared."""

    def __init__(self, name: str, equation: str, role: str = "Restriction map"):
        super().__init__(
            f'{role} "{name}" in "{equation}" is undefined.',
            name=name,
            equation=equation,
        )
        self.name = name
        self.equation = equation


class UnboundValueError(UndefinedReferenceError):
    """A restriction map is declared but no matrix value was bound to it."""

    def __init__(self, name: str, equation: str):
        SemanticError.__init__(
            self,
            f'Restriction map "{name}" in "{equation}" is declared but has no bound matrix.',
            name=name,
            equation=equation,
        )
        self.name = name
        self.equation = equation


class ReferenceKindError(SemanticError):
    """A name is used in a position that does not match its declaration."""

    def __init__(self, name: str, equation: str, expected: str, actual: str):
        super().__init__(
            f'"{name}" in "{equation}" is used as a {expected} but is declared as a {actual}.',
            name=name,
            equation=equation,
            expected=expected,
            actual=actual,
        )
        self.name = name
        self.equation = equation


class DimensionMismatchError(SemanticError):
    """A restriction map cannot be applied to its vertex stalk."""

    def __init__(self, message: str, equation: Optional[str] = None, side: Optional[str] = None, **context):
        super().__init__(message, equation=equation, side=side, **context)
        self.equation = equation
        self.side = side


class InconsistentEdgeError(DimensionMismatchError):
    """Both restriction maps of an equation must land in the same edge stalk."""

    def __init__(self, equation: str, lhs_shape, rhs_shape):
        message = (
            f'Inferred edge stalk on relation: "{equation}" is inconsistent.\n'
            f'    Left restriction map maps dimension {lhs_shape[1]} to dimension {lhs_shape[0]}.\n'
            f'    Right restriction map maps dimension {rhs_shape[1]} to dimension {rhs_shape[0]}.'
        )
        super().__init__(
            message,
            equation=equation,
            lhs_edge_dim=lhs_shape[0],
            rhs_edge_dim=rhs_shape[0],
        )
        self.lhs_edge_dim = lhs_shape[0]
        self.rhs_edge_dim = rhs_shape[0]
