from argparse import Namespace

from cvd_sim.validate import validate_args


def _args(**kw):
    base = dict(image=None, clipboard=True, table=None, workers=1, max_width=None, mode=["protan"])
    base.update(kw)
    return Namespace(**base)


def test_clean_args():
    assert validate_args(_args()) == []


def test_missing_image_file(tmp_path):
    errs = validate_args(_args(clipboard=False, image=str(tmp_path / "none.png")))
    assert errs == [f"IMAGE not found: {tmp_path / 'none.png'}"]


def test_missing_table(tmp_path):
    errs = validate_args(_args(table=str(tmp_path / "t.json")))
    assert len(errs) == 1
    assert errs[0].startswith("--table not found")


def test_unsupported_image_type(tmp_path):
    notes = tmp_path / "notes.txt"
    notes.write_text("x")
    errs = validate_args(_args(clipboard=False, image=str(notes)))
    assert errs == [f"IMAGE type not supported: {notes}"]


def test_png_accepted(tmp_path):
    img = tmp_path / "Shot.PNG"
    img.write_bytes(b"")
    assert validate_args(_args(clipboard=False, image=str(img))) == []


def test_table_type_checked(tmp_path):
    table = tmp_path / "t.csv"
    table.write_text("")
    errs = validate_args(_args(table=str(table)))
    assert len(errs) == 1
    assert errs[0].startswith("--table must be")
