"""
Exception classes for ISV Auth Python SDK
"""

from typing import Optional, Dict, Any


class IsvSDKError(Exception):
    """Base exception for all ISV Auth SDK errors"""
    
    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


class ValidationError(IsvSDKError):
    """Exception raised for validation failures"""
    pass


class ConfigError(IsvSDKError):
    """Exception raised when client configuration cannot be loaded or is invalid"""
    pass


class ServerCommunicationError(IsvSDKError):
    """Exception raised for server communication errors"""
    
    def __init__(self, message: str, error_code: str = "SERVER_ERROR", 
                 http_status: int = 0, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)
        self.http_status = http_status
