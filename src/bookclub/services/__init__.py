"""Integrations with external services: AI provider, Stripe, Google Books."""
