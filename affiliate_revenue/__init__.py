"""
Affiliate revenue engine.

Fee reconciliation and revenue attribution for the affiliate/seller
dashboards: resolves what each student actually paid per fee category in
the reference currency and folds it into seller revenue figures.
"""

__version__ = "1.0.0"
