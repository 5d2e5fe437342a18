"""Quality, complexity and performance trends plus issue forecasting.

Submodules are imported directly (``code_timeline.trends.windows`` etc.);
``windows`` has no intra-package dependencies so version models can use it.
"""
