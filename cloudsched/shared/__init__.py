"""cloudsched/shared — data models and errors used by every other layer."""
