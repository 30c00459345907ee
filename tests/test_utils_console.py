from payroll_allocator.utils import console


def test_print_table_renders_rows(capsys):
    console.print_table("Company Breakdown", ["Company", "Amount"], [["Alpha", "178.00"], ["Beta", "64.00"]], numeric=["Amount"])

    captured = capsys.readouterr()
    assert "Company Breakdown" in captured.out
    assert "Alpha" in captured.out
    assert "178.00" in captured.out


def test_print_warning(capsys):
    console.print_warning("No calendar hours")
    assert "No calendar hours" in capsys.readouterr().out
