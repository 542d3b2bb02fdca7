"""
sheetdiff package

Contains the Google Sheets row-change notifier:
- Poll a sheet range on a fixed interval
- Diff each poll against the previous one, row by row
- Post one Discord webhook message per changed row (mentioning its owner)
- Alert (throttled) when the Google API keeps failing
"""
