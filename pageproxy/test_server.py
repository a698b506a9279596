from unittest.mock import patch

from pageproxy import server


def test_main_runs_uvicorn_with_configured_address():
    with patch("pageproxy.server.uvicorn.run") as run:
        server.main()

    run.assert_called_once_with(server.app, host=server.HOST, port=server.PORT)