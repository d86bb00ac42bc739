class PersistenceError(Exception):
    """Raised when the course/profile storage cannot be read or written.

    Missing data is never an error (first run, incomplete setup); only real
    I/O failures from the database layer are promoted to this type.
    """
