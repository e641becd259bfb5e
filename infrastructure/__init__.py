"""
Infrastructure Package
======================

Provides abstraction layers for external dependencies following the Dependency Inversion Principle.

Modules:
    - payments: Payment provider abstraction (Stripe, mock)
    - identity: Signed-in customer lookup (static provider)
    - container: Service locator wiring providers into commerce services

This package enables:
    - Easy testing with mock implementations
    - Switching between providers without code changes
    - Loose coupling between business rules and infrastructure
"""
