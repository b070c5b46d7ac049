"""Source Notion en mémoire pour les tests"""

from app.core.errors import NotFoundError


def rich_text(*contents, **annotations):
    return [
        {
            "type": "text",
            "text": {"content": content, "link": None},
            "plain_text": content,
            "annotations": dict({"bold": False, "italic": False, "strikethrough": False,
                                 "underline": False, "code": False, "color": "default"}, **annotations),
        }
        for content in contents
    ]


def raw_block(block_id, block_type="paragraph", *contents, has_children=False, **extra):
    value = {"rich_text": rich_text(*contents)}
    value.update(extra)
    return {"id": block_id, "type": block_type, "has_children": has_children, block_type: value}


def raw_page(page_id, title="Mon post", slug=None, status="Draft", password=None, published=None):
    properties = {
        "Name": {"title": [{"plain_text": title}]},
        "Slug": {"rich_text": [{"plain_text": slug}] if slug else []},
        "Status": {"select": {"name": status} if status else None},
        "Draft Password": {"rich_text": [{"plain_text": password}] if password else []},
        "Published": {"date": {"start": published} if published else None},
        "Tags": {"multi_select": [{"name": "notes"}]},
    }
    return {"id": page_id, "properties": properties, "last_edited_time": "2024-05-01T10:00:00.000Z"}


class FakeNotion:
    def __init__(self):
        self.pages = {}
        self.children = {}
        self.calls = []

    def add_page(self, page, blocks=()):
        self.pages[page["id"]] = page
        self.children[page["id"]] = list(blocks)
        return page

    def query_database(self, database_id):
        return list(self.pages.values())

    def retrieve_page(self, page_id):
        if page_id not in self.pages:
            raise NotFoundError("Page not found")
        return self.pages[page_id]

    def list_block_children(self, block_id):
        self.calls.append(block_id)
        if block_id not in self.children:
            raise NotFoundError("Page not found")
        return self.children[block_id]

    def retrieve_block(self, block_id):
        self.calls.append(block_id)
        for blocks in self.children.values():
            for raw in blocks:
                if raw["id"] == block_id:
                    return raw
        raise NotFoundError("Page not found")
