import pytest

from devctl import demo


@pytest.mark.system
def test_demo_runs_default_sequence(sim, capsys):
    code = demo.main(["--host", sim.endpoint.host, "--port", str(sim.endpoint.port), "--timeout-ms", "10000"])
    out = capsys.readouterr().out
    assert code == 0
    assert out.count("Result SUCCESS") == 3
    assert "Command IMAGE expect 480 x 640Bytes" in out
    assert sim.model.requests == ["RESET", "RESET", "IMAGE"]

@pytest.mark.system
def test_demo_exit_code_on_failure(sim, capsys):
    sim.model.faults.drop_rate = 1.0
    code = demo.main([
        "--host", sim.endpoint.host, "--port", str(sim.endpoint.port),
        "--timeout-ms", "100", "--command", "STATUS",
    ])
    assert code == 1
    assert "Result FAIL" in capsys.readouterr().out

def test_demo_sets_simulator_faults(sim, monkeypatch, capsys):
    calls = []

    class FakeApi:
        def __init__(self, base_url):
            calls.append(base_url)

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            pass

        def set_faults(self, **faults):
            calls.append(faults)

    monkeypatch.setattr(demo, "SimApiClient", FakeApi)
    code = demo.main([
        "--host", sim.endpoint.host, "--port", str(sim.endpoint.port),
        "--sim-http", "http://sim:8000", "--drop-rate", "0", "--command", "RESET",
    ])
    assert code == 0
    assert calls == ["http://sim:8000", {"drop_rate": 0.0}]
