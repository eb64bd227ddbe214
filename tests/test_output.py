from portpeek import datatype, output


def _found():
    info = datatype.ProcessInfo(
        pid=42,
        name="redis-server",
        path="/usr/bin/redis-server",
        command="redis-server *:6379 [cluster]",
        cwd="/var/lib/redis",
        sockets=[
            datatype.SocketEntry("tcp", "0.0.0.0", 6379, datatype.LISTEN, 42),
            datatype.SocketEntry("tcp", "::", 6379, datatype.LISTEN, 42),
        ],
    )
    return datatype.Found(6379, [info])


def test_describe_sockets():
    assert output.describe_sockets(_found().owner.sockets) == "TCP 0.0.0.0:6379 LISTEN, TCP :::6379 LISTEN"


def test_render_process_escapes_markup(capsys):
    output.render_process(output.make_console(), 6379, _found().owner)
    out = capsys.readouterr().out
    assert "redis-server *:6379 [cluster]" in out
    assert "(TCP 0.0.0.0:6379 LISTEN, TCP :::6379 LISTEN)" in out


def test_to_json():
    data = output.to_json(_found())
    assert data["found"] is True
    assert data["processes"][0]["sockets"][1]["local_address"] == "::"
    assert output.to_json(datatype.NotFound(1)) == {"port": 1, "found": False, "processes": []}
