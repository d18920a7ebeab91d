# Shared Common Library for the Booking Engine
# Authentication, API exceptions, middleware, pagination and model mixins
# used by the engine and API apps.

__version__ = "1.0.0"
