import marimo

__generated_with = "0.18.3"
app = marimo.App()


@app.cell
def _():
    import content_plane as cp
    from IPython.lib.pretty import pprint
    return cp, pprint


@app.cell
def _(cp):
    r = cp.create_memory_content_repo()
    return (r,)


@app.cell
def _(cp, r):
    page = cp.Page(r, "docs/readme.md")
    page.write("Hello", "init")
    page.write("Hello, world", "expand greeting")
    return (page,)


@app.cell
def _(page, pprint):
    pprint(page)
    pprint(page.history())
    return


@app.cell
def _(cp, page, r):
    old = cp.resolve(r, "docs/readme.md", page.prev_commit().sha)
    print(old.text(), "->", page.text())
    print(page.diff(old.commit.sha, page.commit.sha))
    return


@app.cell
def _(cp, pprint, r):
    root = cp.resolve_tree(r, "")
    pprint(root.children())
    return


@app.cell
def _():
    return


if __name__ == "__main__":
    app.run()
