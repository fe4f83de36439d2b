"""Project records, built at load time."""


def data():
    return [
        {"name": "Analytical Engine Notes", "year": 1843},
        {"name": "On Computable Numbers", "year": 1936},
    ]
