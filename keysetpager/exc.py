class BasePaginationError(Exception):
    pass


class InvalidRequestError(BasePaginationError):
    """ Invalid input provided by the User

    Reported when there's something wrong with the pagination request: it's a client error, never a server fault
    """

    def __init__(self, err: str):
        super().__init__(f'Pagination request error: {err}')


class CursorDecodeError(InvalidRequestError):
    """ Malformed cursor

    Reported when a "before" or "after" cursor cannot be decoded into a position
    """

    def __init__(self, cursor: str, err: str):
        self.cursor = cursor
        super().__init__(f'Malformed cursor {cursor!r}: {err}')


class InvalidColumnError(BasePaginationError):
    """ Query mentioned an invalid column name

    Reported when a field mentioned by name is not found on the model
    """

    def __init__(self, model: str, column_name: str, where: str):
        self.model = model
        self.column_name = column_name
        self.where = where

        super().__init__(f'Invalid column "{column_name}" for "{model}" specified in {where}')


class InvalidRelationError(InvalidColumnError):
    """ Query mentioned an invalid relationship name

    Reported when a relation mentioned by name in "include" is not found on the model
    """
