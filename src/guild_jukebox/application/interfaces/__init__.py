"""Port interfaces implemented by the infrastructure layer."""
