"""Chart feed providers.

BillboardChartProvider reads the public Billboard Hot 100 JSON mirror
(all charts, the most recent chart, one chart by date, valid dates).
"""

from src.providers.charts.billboard_provider import BillboardChartProvider

__all__ = ["BillboardChartProvider"]
