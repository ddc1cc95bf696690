"""repeatsave: save form submissions, including repeatable containers, to a database."""

__version__ = "0.1.0"

# Import callable protocol - these imports must come after __version__ to avoid circular import
from repeatsave.callable import CallableResult, execute

__all__ = ["__version__", "CallableResult", "execute"]
