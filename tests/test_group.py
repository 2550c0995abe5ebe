"""Tests for switchyard.routing.group — nested group frames."""

from switchyard.routing.group import GroupFrame, GroupScope, GroupStack


def _auth(request, next):
    return next(request)


def _log(request, next):
    return next(request)


class TestGroupFrameMerge:
    def test_prefix_concatenates_parent_first(self) -> None:
        frame = GroupFrame(prefix="/api").merge(prefix="/v1")
        assert frame.prefix == "/api/v1"

    def test_missing_prefix_inherits(self) -> None:
        assert GroupFrame(prefix="/api").merge().prefix == "/api"

    def test_names_dot_join(self) -> None:
        assert GroupFrame(name="admin").merge(name="users").name == "admin.users"

    def test_child_name_without_parent(self) -> None:
        assert GroupFrame().merge(name="users").name == "users"

    def test_parent_name_inherited(self) -> None:
        assert GroupFrame(name="admin").merge().name == "admin"

    def test_middleware_parent_then_child(self) -> None:
        frame = GroupFrame(middleware=(_auth,)).merge(middleware=[_log])
        assert frame.middleware == (_auth, _log)

    def test_child_domain_overrides(self) -> None:
        frame = GroupFrame(domain="a.example.com").merge(domain="b.example.com")
        assert frame.domain == "b.example.com"

    def test_domain_inherited(self) -> None:
        assert GroupFrame(domain="a.example.com").merge().domain == "a.example.com"

    def test_merge_does_not_mutate_parent(self) -> None:
        parent = GroupFrame(prefix="/api", middleware=(_auth,))
        parent.merge(prefix="/v1", middleware=(_log,))
        assert parent == GroupFrame(prefix="/api", middleware=(_auth,))


class TestGroupStack:
    def test_empty_stack_current_is_default_frame(self) -> None:
        stack = GroupStack()
        assert stack.current == GroupFrame()
        assert len(stack) == 0

    def test_nested_enter_accumulates(self) -> None:
        stack = GroupStack()
        stack.enter(prefix="/api", name="api", middleware=(_auth,))
        stack.enter(prefix="/v1", name="v1", middleware=(_log,))
        assert stack.current == GroupFrame(
            prefix="/api/v1",
            middleware=(_auth, _log),
            name="api.v1",
        )
        assert len(stack) == 2

    def test_exit_restores_parent(self) -> None:
        stack = GroupStack()
        stack.enter(prefix="/api")
        stack.enter(prefix="/v1")
        stack.exit()
        assert stack.current.prefix == "/api"

    def test_exit_on_empty_is_noop(self) -> None:
        stack = GroupStack()
        stack.exit()
        assert stack.current == GroupFrame()

    def test_clear(self) -> None:
        stack = GroupStack()
        stack.enter(prefix="/api")
        stack.clear()
        assert len(stack) == 0


class TestGroupScope:
    def test_context_manager_pushes_and_pops(self) -> None:
        stack = GroupStack()
        with GroupScope(stack, prefix="/api") as frame:
            assert frame.prefix == "/api"
            assert stack.current.prefix == "/api"
        assert len(stack) == 0

    def test_pops_on_exception(self) -> None:
        stack = GroupStack()
        try:
            with GroupScope(stack, prefix="/api"):
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        assert len(stack) == 0
