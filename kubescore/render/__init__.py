"""Renderers that turn a scorecard into human, CI or JSON output."""