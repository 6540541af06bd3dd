"""
Shotboard
v1.0.0

Client core for on-set storyboard / shot tracking: decodes the project
API's loosely-typed payloads into canonical records, keeps them cached
offline, orders frames for story and shoot views, resolves schedules and
applies status and board changes from the user and the realtime stream.
"""

__version__ = "1.0.0"
