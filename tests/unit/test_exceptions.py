"""Unit tests for custom exception hierarchy."""

import pytest

from cellsheaf.utils.exceptions import (
    CellSheafError,
    ValidationError,
    ShapeError,
    ComputationError,
    ConfigurationError,
    ConvergenceError,
    SheafDSLError,
    SheafSyntaxError,
    MalformedStatementError,
    InvalidProductError,
    SemanticError,
    DuplicateDeclarationError,
    UnsupportedTypeError,
    UndefinedReferenceError,
    UnboundValueError,
    ReferenceKindError,
    DimensionMismatchError,
    InconsistentEdgeError,
)


class TestCellSheafError:
    """Test base CellSheafError class."""

    def test_basic_creation(self):
        error = CellSheafError("Test error message")

        assert str(error) == "Test error message"
        assert error.message == "Test error message"
        assert error.context == {}
        assert error.recoverable is False

    def test_string_representation_with_context(self):
        error = CellSheafError("Test error", context={"param": "value", "count": 10})

        error_str = str(error)
        assert "Test error" in error_str
        assert "param=value" in error_str
        assert "count=10" in error_str

    def test_to_dict_method(self):
        error = CellSheafError("Test message", context={"test": "value"}, recoverable=True)

        error_dict = error.to_dict()

        assert error_dict["type"] == "CellSheafError"
        assert error_dict["message"] == "Test message"
        assert error_dict["context"] == {"test": "value"}
        assert error_dict["recoverable"] is True


class TestNumericErrors:
    """Test the numeric error families."""

    def test_validation_error_context(self):
        error = ValidationError("bad", parameter="x", expected=12, actual=11)

        assert error.recoverable is True
        assert error.context == {"parameter": "x", "expected": 12, "actual": 11}

    def test_shape_error_is_validation_error(self):
        error = ShapeError("wrong shape", parameter="map1", expected=(1, 4), actual=(1, 3))

        assert isinstance(error, ValidationError)
        assert error.context["expected"] == (1, 4)

    def test_computation_error(self):
        error = ComputationError("failed", operation="laplacian", values={"info": -1})

        assert error.recoverable is False
        assert error.context == {"operation": "laplacian", "info": -1}

    def test_configuration_error(self):
        error = ConfigurationError("bad rtol", config_key="rtol", config_value=-1.0)

        assert error.context == {"config_key": "rtol", "config_value": -1.0}

    def test_convergence_error_extra_context(self):
        error = ConvergenceError("no", algorithm="cg", iterations=5, tolerance=1e-10,
                                 context={"residual_norm": 0.5})

        assert error.context["algorithm"] == "cg"
        assert error.context["iterations"] == 5
        assert error.context["residual_norm"] == 0.5


class TestDSLErrors:
    """Test DSL error messages and hierarchy."""

    def test_hierarchy(self):
        assert issubclass(SheafSyntaxError, SheafDSLError)
        assert issubclass(SemanticError, SheafDSLError)
        assert issubclass(MalformedStatementError, SheafSyntaxError)
        assert issubclass(InvalidProductError, SheafSyntaxError)
        assert issubclass(UnboundValueError, UndefinedReferenceError)
        assert issubclass(InconsistentEdgeError, DimensionMismatchError)
        assert issubclass(SheafDSLError, CellSheafError)

    def test_none_context_values_dropped(self):
        error = MalformedStatementError("x::", line=None)

        assert "line" not in error.context
        assert error.context["statement"] == "x::"

    def test_invalid_product_message(self):
        error = InvalidProductError("A + x", line=3)

        assert "A + x" in error.message
        assert "A*x or A(x)" in error.message
        assert error.line == 3

    def test_duplicate_declaration_message(self):
        error = DuplicateDeclarationError("A")

        assert error.message == 'Variable: "A" has already been declared.'
        assert error.name == "A"

    def test_unsupported_type_names_supported(self):
        error = UnsupportedTypeError("x", "Vector")

        assert '"Vector"' in error.message
        assert '"Stalk"' in error.message

    def test_undefined_reference_message(self):
        error = UndefinedReferenceError("R", "R(x) == B(y)")

        assert error.message == 'Restriction map "R" in "R(x) == B(y)" is undefined.'
        assert error.context == {"name": "R", "equation": "R(x) == B(y)"}

    def test_reference_kind_message(self):
        error = ReferenceKindError("x", "x(y) == B(z)", "restriction map", "vertex stalk")

        assert "used as a restriction map" in error.message
        assert "declared as a vertex stalk" in error.message

    def test_inconsistent_edge_reports_both_sides(self):
        error = InconsistentEdgeError("A(x) == B(y)", (1, 4), (2, 4))

        assert "Left restriction map maps dimension 4 to dimension 1." in error.message
        assert "Right restriction map maps dimension 4 to dimension 2." in error.message
        assert error.lhs_edge_dim == 1
        assert error.rhs_edge_dim == 2
