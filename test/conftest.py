pytest_plugins = [
    "fixtures.general",
    "fixtures.contracts",
    "fixtures.jobs",
]
