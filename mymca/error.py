# ====================================================================
# Errors
# ====================================================================
class MyMCAError(Exception):
    """ Base class for all errors issued by MyMCA library
    """
    def __init__(self, message, **kwargs):
        super().__init__(message.format(**kwargs))

# ====================================================================
# Warnings
# ====================================================================
class MyMCAWarning(UserWarning):
    """ Base class for all warnings issued by MyMCA library
    """
    def __init__(self, message, **kwargs):
        super().__init__(message.format(**kwargs))
