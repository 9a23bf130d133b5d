class ApplicationError(Exception):
    pass


class ProviderError(ApplicationError):
    pass


class PolicyLookupError(ApplicationError):
    pass


class ObjectDecodeError(ApplicationError):
    pass


class SerializationError(ApplicationError):
    pass
