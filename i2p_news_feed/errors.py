##########################################################################################
#
# Script name: errors.py
#
# Description: Exception hierarchy shared by the feed builder and the su3 signer.
#
##########################################################################################


# ****************************************************************************************
# Exceptions
# ****************************************************************************************


class Error(Exception):
    '''
    Base class for exceptions in this package.
    '''
    pass


class InputAbsentError(Error):
    '''
    A required input file (entries HTML, releases JSON) does not exist.
    The build driver logs it and skips the current feed.
    '''
    def __init__(self, operation: str, path: str, cause: OSError | None = None):
        detail = cause.strerror if cause is not None and cause.strerror else 'file not found'
        self.path = str(path)
        self.message = f'{operation}: {self.path}: {detail}'
        super().__init__(self.message)


class InputMalformedError(Error, ValueError):
    '''
    An input exists but cannot be used: bad JSON shape, invalid blocklist
    fragment, unreadable file.
    '''
    pass


class OutputError(Error):
    '''
    Writing build output failed. Fatal for the whole invocation.
    '''
    def __init__(self, operation: str, path: str, cause: OSError):
        self.path = str(path)
        self.message = f'{operation}: {self.path}: {cause}'
        super().__init__(self.message)


class SignerConfigError(Error):
    '''
    The signer cannot produce an su3 file for one feed: unsupported key,
    unreadable key file, wrong source suffix, or a rejected signature.
    '''
    pass
