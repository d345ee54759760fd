"""Generate rate history chart data for static export."""
import json
import logging

from ratecroft.pricing.history import HISTORY_SERIES, PERIODS
from ratecroft.service import RateService

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

output = {}
with RateService() as service:
    for series in HISTORY_SERIES:
        output[series] = {
            period: service.rate_history(period, series)
            for period in PERIODS
        }
    output['today'] = service.get_today_rates()

with open('chart_data.json', 'w') as f:
    json.dump(output, f)

points = sum(len(h['data']) for s in HISTORY_SERIES for h in output[s].values())
print(f"Saved {points} history points to chart_data.json")
