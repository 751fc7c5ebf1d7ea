"""
ge_tracker.analytics — GE tax and profit, trend detection, and price
suggestions.

Import surface::

    from ge_tracker.analytics.tax         import calculate_flip_tax
    from ge_tracker.analytics.trend       import analyze_trend
    from ge_tracker.analytics.suggestions import suggest_prices
    from ge_tracker.analytics.market      import get_item_trend
"""
