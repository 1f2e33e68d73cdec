"""
Hermetia Incubator Monitor Backend
==================================

This is the Python package for the incubator monitoring API.

HOW IT'S ORGANIZED:
------------------
- models/    = Data structures (what does a user, a reading, an alert look like?)
- services/  = Workers (query MongoDB, aggregate history, watch the sensors)
- routers/   = API endpoints (the doors into our app)
- utils/     = Small pure helpers (validation, time-series bucketing)
- database.py = MongoDB connection shared by every request
- main.py    = Puts it all together and starts the server
"""

__version__ = "1.0.0"
