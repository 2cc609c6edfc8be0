"""Core utilities shared by the rendezvous domain packages."""
