"""Subscription billing through interchangeable payment providers."""
