"""AWS client construction shared by the adapters."""
