"""HTTP API for loading programs and driving simulations."""
