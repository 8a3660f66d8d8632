"""
Services.

Import services from their subpackages, e.g.
`from affiliate_revenue.services.revenue import RevenueService`.
"""
