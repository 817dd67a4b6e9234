import ast
import operator as op
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from sportledger.errors import InvalidAmountError

_ALLOWED_OPS = {
    ast.Add: op.add,
    ast.Sub: op.sub,
    ast.Mult: op.mul,
    ast.Div: op.truediv,
    ast.USub: op.neg,
    ast.UAdd: op.pos,
}

ZERO = Decimal("0")
CENT = Decimal("0.01")


def parse_amount(expr) -> Decimal:
    """
    Parse a money amount, allowing simple arithmetic.
    Allowed: numbers, + - * /, parentheses, unary +/-; a single comma is a decimal separator.
    Examples: "30", "30,50", "120/4", "(40+20)/2"
    """
    if expr is None:
        raise InvalidAmountError("Amount is empty")
    if isinstance(expr, (Decimal, int, float)) and not isinstance(expr, bool):
        val = Decimal(str(expr))
        # json and numericised sheet cells can carry NaN / Infinity
        if not val.is_finite():
            raise InvalidAmountError(f"Invalid amount: {expr!r}")
        return val

    s = str(expr).strip().replace("€", "").replace(" ", "")
    if not s:
        raise InvalidAmountError("Amount is empty")
    if "," in s and "." not in s:
        s = s.replace(",", ".")
    else:
        s = s.replace(",", "")

    try:
        node = ast.parse(s, mode="eval").body
    except SyntaxError as exc:
        raise InvalidAmountError(f"Invalid amount: {expr!r}") from exc

    def _eval(n):
        if isinstance(n, ast.Constant) and isinstance(n.value, (int, float)) and not isinstance(n.value, bool):
            return Decimal(str(n.value))
        if isinstance(n, ast.UnaryOp) and type(n.op) in _ALLOWED_OPS:
            return _ALLOWED_OPS[type(n.op)](_eval(n.operand))
        if isinstance(n, ast.BinOp) and type(n.op) in _ALLOWED_OPS:
            return _ALLOWED_OPS[type(n.op)](_eval(n.left), _eval(n.right))
        raise InvalidAmountError(f"Unsupported expression: {expr!r}")

    try:
        val = _eval(node)
    except (ZeroDivisionError, InvalidOperation) as exc:
        raise InvalidAmountError(f"Invalid amount: {expr!r}") from exc
    if not val.is_finite():
        raise InvalidAmountError("Invalid numeric result")
    return val


def to_decimal(x, default: Decimal = ZERO) -> Decimal:
    """Lenient variant for values read back from storage."""
    if x is None or x == "":
        return default
    try:
        return parse_amount(x)
    except InvalidAmountError:
        return default


def format_eur(amount: Decimal) -> str:
    q = Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    if q == 0:
        q = abs(q)
    return f"€ {q:.2f}"
