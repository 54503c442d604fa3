"""
Domain types and content helpers shared by the portfolio service.
"""
