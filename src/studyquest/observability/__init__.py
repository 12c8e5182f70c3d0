"""Observability: Prometheus metrics and Sentry error tracking"""
