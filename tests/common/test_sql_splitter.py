from src.eduride.eduride.database.bootstrap import iter_sql_statements


def test_splits_on_semicolons_and_drops_comments():
    sql = """
    -- buses first
    CREATE TABLE buses (id INT); -- trailing
    INSERT INTO buses VALUES (1);
    """

    assert list(iter_sql_statements(sql)) == [
        "CREATE TABLE buses (id INT)",
        "INSERT INTO buses VALUES (1)",
    ]


def test_semicolons_and_dashes_inside_quotes_are_kept():
    sql = "INSERT INTO users(name) VALUES ('a;b -- c'); SELECT \"x;y\""

    assert list(iter_sql_statements(sql)) == [
        "INSERT INTO users(name) VALUES ('a;b -- c')",
        'SELECT "x;y"',
    ]


def test_single_dash_is_an_operator():
    assert list(iter_sql_statements("SELECT 3-1;")) == ["SELECT 3-1"]


def test_escaped_quote():
    assert list(iter_sql_statements(r"SELECT 'it\'s;fine'")) == [r"SELECT 'it\'s;fine'"]


def test_blank_statements_are_skipped():
    assert list(iter_sql_statements(";; \n ;")) == []
