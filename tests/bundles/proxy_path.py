"""A compiled bundle that rewrites GitHub file URLs into highlight proxy paths.

    python oakrun.py tests/bundles/proxy_path.py https://github.com/u/r/blob/main/x.py#L1-L5
    /highlight/https://raw.githubusercontent.com/u/r/main/x.py?start=1&end=5
"""
from oak.oak_datatypes import Empty, access, concat, equals, to_int


def bundle(runtime):
    modules = runtime.modules

    def main():
        std = modules.import_module("std")
        str_ = modules.import_module("str")
        fmt = modules.import_module("fmt")
        args = runtime.builtins["args"]

        def line_number(s):
            if equals(access(s, 0), "L"):
                return to_int(std["slice"](s, 1))
            return None

        def input_url_to_proxy_path(url):
            parts = str_["split"](str_["trimStart"](url, "https://"), "/")
            if not equals(std["take"](parts, 4), ["github.com", Empty, Empty, "blob"]):
                return concat("/highlight/", url)

            user, repo = access(parts, 1), access(parts, 2)
            path = str_["join"](std["slice"](parts, 4), "/")
            path, hash_ = str_["cut"](path, "#")
            offsets = std["map"](str_["split"](hash_, "-"), line_number)
            start, end = access(offsets, 0), access(offsets, 1)
            proxy_path = fmt["format"](
                "/highlight/https://raw.githubusercontent.com/{{ user }}/{{ repo }}/{{ path }}",
                {"user": user, "repo": repo, "path": path},
            )
            if start is not None and end is not None:
                return concat(proxy_path, fmt["format"]("?start={{0}}&end={{1}}", start, end))
            return proxy_path

        for url in std["slice"](args(), 1):
            std["println"](input_url_to_proxy_path(url))

        return {"inputURLToProxyPath": input_url_to_proxy_path}

    modules.register("", main)
