from __future__ import annotations

import html


def render_lucky_page(number: object) -> str:
    value = html.escape(str(number))
    return f"""<!DOCTYPE html>
<html>
  <head>
    <title>Your Lucky Number</title>
    <style>
      body {{ font-family: sans-serif; text-align: center; margin-top: 3em; }}
      .number {{ font-size: 3em; color: #2b7a78; }}
    </style>
  </head>
  <body>
    <div>
      <h1>Your Lucky Number</h1>
      <div class="number">{value}</div>
    </div>
  </body>
</html>
"""
