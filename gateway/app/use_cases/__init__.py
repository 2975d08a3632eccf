"""
Use Cases

Organized by gateway capability:
- tokens/: anti-forgery token issue and validation
- rate_limit/: sliding-window limiter and its configuration
- sessions/: session registration and trust validation
- geo/: geographic/network risk
- elevation/: risk-based trust elevation
- events/: event ingestion and maintenance
"""
