"""LoanGuard: loan admission with jurisdiction concentration limits."""

__version__ = "1.0.0"
