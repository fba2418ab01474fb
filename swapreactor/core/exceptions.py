"""
swapreactor Exception Hierarchy

All exceptions inherit from ReactorError for easy catching.

Categories map onto the settlement pipeline stage that raises them:
    OrderError         : resolution (before any custody movement)
    FeePolicyError     : fee composition (before any custody movement)
    AuthorizationError : owner / role checks (no state change)
    CustodyError       : input collection and fee claims
    SettlementShortfall: post-fill balance verification
"""


class ReactorError(Exception):
    """Base exception for all swapreactor errors"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ValidationError(ReactorError):
    """Raised when caller-supplied data fails basic validation"""
    pass


class ConfigError(ReactorError):
    """Raised when reactor configuration is missing or invalid"""
    pass


class LedgerError(ReactorError):
    """Raised when fill journal operations fail"""
    pass


# ── Malformed order ───────────────────────────────────────────

class OrderError(ReactorError):
    """Raised when an order cannot be resolved"""
    pass


class MalformedOrder(OrderError):
    """Encoded order bytes do not decode to a known order shape"""
    pass


class UnknownOrderType(OrderError):
    """No resolver is registered for the order type tag"""
    pass


class InvalidReactor(OrderError):
    """Order names a different reactor address"""
    pass


class InvalidDecayWindow(OrderError):
    """Decay end time is not strictly after decay start time"""
    pass


class DeadlineBeforeEndTime(OrderError):
    """Order deadline falls before the decay end time"""
    pass


class IncorrectAmounts(OrderError):
    """Input decays downward or an output decays upward"""
    pass


class InputAndOutputDecay(OrderError):
    """Both the input and at least one output decay"""
    pass


class ValidationFailed(OrderError):
    """Additional validation hook rejected the order"""
    pass


# ── Fee policy ────────────────────────────────────────────────

class FeePolicyError(ReactorError):
    """Raised when fee composition violates fee policy"""
    pass


class FeeTooLarge(FeePolicyError):
    """Fee output exceeds the configured ceiling"""
    pass


class DuplicateFeeOutput(FeePolicyError):
    """Fee controller returned the same token more than once"""
    pass


class InvalidFeeToken(FeePolicyError):
    """Fee token is not used by any real output"""
    pass


class InvalidFee(FeePolicyError):
    """Fee split outside 0..10000 basis points"""
    pass


# ── Authorization ─────────────────────────────────────────────

class AuthorizationError(ReactorError):
    """Raised when a caller lacks the role an operation requires"""
    pass


class Unauthorized(AuthorizationError):
    """Caller is not the owner / current role holder"""
    pass


# ── Custody ───────────────────────────────────────────────────

class CustodyError(ReactorError):
    """Raised when token custody cannot be transferred"""
    pass


class InvalidSignature(CustodyError):
    """Offerer signature does not verify over the order hash"""
    pass


class SignatureExpired(CustodyError):
    """Permit deadline has passed"""
    pass


class InvalidNonce(CustodyError):
    """Nonce already consumed or invalidated"""
    pass


class InvalidAmount(CustodyError):
    """Requested amount exceeds the signed maximum"""
    pass


class InsufficientBalance(CustodyError):
    """Sender balance is below the transfer amount"""
    pass


# ── Settlement ────────────────────────────────────────────────

class SettlementShortfall(ReactorError):
    """Raised when post-fill balances fall short of expectations"""
    pass


class InsufficientOutput(SettlementShortfall):
    """A recipient received less than its expected output delta"""
    pass
