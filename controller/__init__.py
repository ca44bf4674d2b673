"""
Robot sync controller package.

This service is responsible for:
- Polling the robot's onboard HTTP controller for encoder counts and IMU data.
- Posting bias-corrected telemetry to the remote policy service.
- Executing suggested actions in auto mode and manual commands in manual mode.

The operator-facing HTTP/WebSocket surface is implemented with Tornado.
"""
