"""HTTP routers for the intake and recorder apps."""
