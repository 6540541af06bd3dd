"""
Error types raised by the shotboard client.

Every error carries a message suitable for showing to a user as-is:
str(error) is the display text.
"""
from typing import Optional


class ShotboardError(Exception):
  """Base class for all client errors"""
  default_message = "Something went wrong"

  def __init__(self, message: Optional[str] = None):
    super().__init__(message or self.default_message)

  @property
  def message(self) -> str:
    return str(self)


class InvalidInputError(ShotboardError):
  """Malformed access code, URL or mutation arguments"""
  default_message = "Invalid input"


class UnauthenticatedError(ShotboardError):
  """No stored credential"""
  default_message = "No authentication data found. Please login."


class UnauthorizedError(ShotboardError):
  """Server rejected the stored credential"""
  default_message = "Authentication expired. Please login again."


class RequestFailedError(ShotboardError):
  """Non-2xx response, or the request never completed"""

  def __init__(self, status_code: Optional[int] = None, message: Optional[str] = None):
    self.status_code = status_code
    if not message:
      if status_code is None:
        message = "Request failed"
      else:
        message = f"Request failed with status code: {status_code}"
    super().__init__(message)


class NotFoundError(RequestFailedError):
  """404 from the server"""

  def __init__(self, message: Optional[str] = None):
    super().__init__(404, message or "The requested item was not found")


class ServerRejectedError(ShotboardError):
  """2xx response carrying success: false"""
  default_message = "The server rejected the request"


class DecodeFailureError(ShotboardError):
  """Response body is not a JSON object"""
  default_message = "Invalid server response"
