import pytest

from harness.errors import ErrorCode, GuardError, ResolutionError, StepAssertionError
from harness.network import NetworkEvent, RequestEventQueue
from steps.dsl import Step, build_registry, build_selector

EXPECTED_ACTIONS = [
    "reset",
    "type",
    "click",
    "location",
    "exist",
    "notExist",
    "contains",
    "goto",
    "select",
    "reload",
    "xhr",
    "disabled",
    "notDisabled",
    "wait",
    "code",
]

SAMPLE_STEPS = {
    "reset": {"action": "reset"},
    "type": {"action": "type", "selector": "#name", "args": {"typeContent": "Ada"}},
    "click": {"action": "click", "selector": "#save"},
    "location": {"action": "location", "selector": "/home"},
    "exist": {"action": "exist", "selector": "#msg"},
    "notExist": {"action": "notExist", "selector": "#ghost"},
    "contains": {"action": "contains", "selector": "#msg", "args": {"textContent": "world"}},
    "goto": {"action": "goto", "selector": "/orders"},
    "select": {"action": "select", "selector": "#country", "args": {"typeContent": "fr"}},
    "reload": {"action": "reload"},
    "xhr": {"action": "xhr", "selector": "/api/items"},
    "disabled": {"action": "disabled", "selector": "#locked"},
    "notDisabled": {"action": "notDisabled", "selector": "#save"},
    "wait": {"action": "wait", "args": {"timeout": 1}},
    "code": {"action": "code", "args": {"codeBlock": "frame.touched = True"}},
}


@pytest.fixture
def page(frame_factory, element_factory):
    return frame_factory(
        "http://app.test/home",
        elements={
            "#name": [element_factory("input", value="old")],
            "#save": [element_factory("button")],
            "#msg": [element_factory("p", text="Hello world")],
            "#country": [element_factory("select")],
            "#locked": [element_factory("button", disabled=True)],
        },
        storage={"a": "1", "test:session": "keep"},
    )


@pytest.fixture
def events():
    queue = RequestEventQueue()
    queue.push(NetworkEvent.from_url("GET", "http://app.test/api/items"))
    return queue


@pytest.fixture
def registry(config, events):
    return build_registry(config, events)


def code_for(registry, **payload):
    return registry.generate_code(registry.parse_step(payload))


def test_catalog_order_and_shape(registry):
    assert [definition.action for definition in registry] == EXPECTED_ACTIONS
    for definition in registry:
        assert callable(definition.generate_code)
        assert callable(definition.run_step)
        assert definition.label


def test_sample_steps_cover_the_catalog(registry):
    assert sorted(SAMPLE_STEPS) == sorted(definition.action for definition in registry)


@pytest.mark.asyncio
@pytest.mark.parametrize("action", EXPECTED_ACTIONS)
async def test_every_action_generates_code_and_runs(registry, page, action):
    step = registry.parse_step(SAMPLE_STEPS[action])

    code = registry.generate_code(step)
    await registry.run_step(step, page)

    assert isinstance(code, str) and code


# ---------------------------------------------------------------------------
# code generation


def test_reset_code(registry):
    assert code_for(registry, action="reset") == "\n".join(
        ["cy.clearCookies()", "cy.clearLocalStorage()", "cy.visit('/home')"]
    )


def test_type_code_omits_absent_timeout(registry):
    assert code_for(registry, **SAMPLE_STEPS["type"]) == "cy.get('#name').clear().type('Ada')"
    assert (
        code_for(registry, action="type", selector="#name", timeout=4000, args={"typeContent": "Ada"})
        == "cy.get('#name', { timeout: 4000 }).clear().type('Ada')"
    )


def test_type_code_escapes_quotes(registry):
    code = code_for(registry, action="type", selector="#name", args={"typeContent": "it's"})

    assert code == "cy.get('#name').clear().type('it\\'s')"


def test_click_code(registry):
    assert code_for(registry, action="click", selector="#save") == "cy.get('#save').click()"
    assert (
        code_for(
            registry,
            action="click",
            selector="Save",
            selectType="content",
            timeout=100,
            args={"forceClick": True},
        )
        == "cy.contains('Save', { timeout: 100 }).click({ force: true })"
    )


def test_location_code(registry):
    assert code_for(registry, action="location", selector="/home") == "cy.location('pathname').should('eq', '/home')"
    assert (
        code_for(
            registry,
            action="location",
            selector="http://app.test",
            args={"locationProperty": "href", "locationMatchType": "startsWith"},
        )
        == "cy.location('href').should('match', new RegExp('^http://app.test'))"
    )


def test_assertion_codes(registry):
    assert code_for(registry, action="exist", selector="Welcome", selectType="content") == (
        "cy.contains('Welcome').should('exist')"
    )
    assert code_for(registry, action="notExist", selector="#ghost") == "cy.get('#ghost').should('not.exist')"
    assert code_for(registry, **SAMPLE_STEPS["contains"]) == "cy.get('#msg').contains('world')"
    assert code_for(registry, action="disabled", selector="#locked") == "cy.get('#locked').should('be.disabled')"
    assert code_for(registry, action="notDisabled", selector="#save") == (
        "cy.get('#save').should('not.be.disabled')"
    )


def test_navigation_codes(registry):
    assert code_for(registry, **SAMPLE_STEPS["goto"]) == "cy.visit('/orders')"
    assert code_for(registry, action="reload") == "cy.reload()"
    assert code_for(registry, **SAMPLE_STEPS["select"]) == "cy.get('#country').select('fr')"


def test_xhr_code(registry):
    code = code_for(registry, id="step-1", action="xhr", selector="/api/items", args={"xhrMethod": "POST"})

    assert code.splitlines() == [
        "helpers.waitForXHR({",
        "\tid: 'step-1',",
        "\tmethod: 'POST',",
        "\tproperty: 'pathname',",
        "\tvalue: '/api/items',",
        "})",
    ]


def test_wait_and_code_defaults(registry):
    assert code_for(registry, action="wait") == "cy.wait(500)"
    assert code_for(registry, action="code") == "print('hello, world')"


def test_code_block_is_labelled_as_python(registry):
    [param] = registry.get("code").params

    assert "Python" in param.label
    assert code_for(registry, action="code", args={"codeBlock": "await cy.wait(1)"}) == "await cy.wait(1)"


# ---------------------------------------------------------------------------
# live execution


@pytest.mark.asyncio
async def test_reset_clears_state_and_visits_default_path(registry, page):
    await registry.run_step(Step(action="reset"), page)

    assert page.cookies == {}
    assert page.storage == {"test:session": "keep"}
    assert page.navigations == ["http://app.test/home"]


@pytest.mark.asyncio
async def test_type_clears_then_types(registry, page):
    await registry.run_step(Step.model_validate(SAMPLE_STEPS["type"]), page)

    element = page.elements["#name"][0]
    assert element.value == "Ada"
    assert [event for event, _ in element.events] == ["input", "input"]


@pytest.mark.asyncio
async def test_type_with_content_selector(registry, page, element_factory):
    step = Step(action="type", selector="Email", selectType="content", args={"typeContent": "a@b.c"})
    element = element_factory()
    page.elements[build_selector(step)] = [element]

    await registry.run_step(step, page)

    assert element.value == "a@b.c"


@pytest.mark.asyncio
async def test_click_disabled_element_needs_force(registry, page):
    locked = page.elements["#locked"][0]

    with pytest.raises(GuardError):
        await registry.run_step(Step(action="click", selector="#locked"), page)
    await registry.run_step(Step(action="click", selector="#locked", args={"forceClick": True}), page)

    assert locked.events == [("click", {"bubbles": True})]


@pytest.mark.asyncio
async def test_click_missing_element(registry, page):
    with pytest.raises(ResolutionError, match="#ghost"):
        await registry.run_step(Step(action="click", selector="#ghost"), page)


@pytest.mark.asyncio
async def test_location_mismatch(registry, page):
    with pytest.raises(StepAssertionError, match=r"Unexpected pathname: '/home' \(expected '/other'\)"):
        await registry.run_step(Step(action="location", selector="/other"), page)


@pytest.mark.asyncio
async def test_location_prefix_match_on_href(registry, page):
    step = Step(
        action="location",
        selector="http://app.test/h",
        args={"locationProperty": "href", "locationMatchType": "startsWith"},
    )
    await registry.run_step(step, page)

    with pytest.raises(StepAssertionError):
        await registry.run_step(step.model_copy(update={"selector": "/home"}), page)


@pytest.mark.asyncio
async def test_existence_assertions(registry, page):
    with pytest.raises(ResolutionError, match="Could not find element matching: '#ghost'"):
        await registry.run_step(Step(action="exist", selector="#ghost"), page)

    with pytest.raises(ResolutionError) as excinfo:
        await registry.run_step(Step(action="notExist", selector="#msg"), page)
    assert excinfo.value.code is ErrorCode.UNEXPECTED_ELEMENT


@pytest.mark.asyncio
async def test_contains_text_mismatch(registry, page):
    step = Step(action="contains", selector="#msg", args={"textContent": "bye"})

    with pytest.raises(StepAssertionError, match="Could not find content 'bye' in '#msg'"):
        await registry.run_step(step, page)


@pytest.mark.asyncio
async def test_goto_is_guarded(registry, page):
    with pytest.raises(GuardError):
        await registry.run_step(Step(action="goto", selector="https://elsewhere.test/"), page)
    await registry.run_step(Step.model_validate(SAMPLE_STEPS["goto"]), page)

    assert page.navigations == ["http://app.test/orders"]


@pytest.mark.asyncio
async def test_select_sets_value_with_change_event(registry, page):
    await registry.run_step(Step.model_validate(SAMPLE_STEPS["select"]), page)

    element = page.elements["#country"][0]
    assert element.value == "fr"
    assert element.events == [("change", {"bubbles": True, "simulated": True})]


@pytest.mark.asyncio
async def test_reload(registry, page):
    await registry.run_step(Step(action="reload"), page)

    assert page.reloads == 1


@pytest.mark.asyncio
async def test_xhr_consumes_queue_until_match(config, page):
    queue = RequestEventQueue()
    for method, path in (("GET", "/other"), ("GET", "/api/items"), ("POST", "/later")):
        queue.push(NetworkEvent.from_url(method, f"http://app.test{path}"))
    registry = build_registry(config, queue)

    await registry.run_step(Step.model_validate(SAMPLE_STEPS["xhr"]), page)
    assert [event.pathname for event in queue.pending()] == ["/later"]

    with pytest.raises(StepAssertionError):
        await registry.run_step(Step.model_validate(SAMPLE_STEPS["xhr"]), page)
    assert len(queue) == 0


@pytest.mark.asyncio
async def test_disabled_assertions(registry, page):
    with pytest.raises(StepAssertionError, match="'#save' is not disabled"):
        await registry.run_step(Step(action="disabled", selector="#save"), page)
    with pytest.raises(StepAssertionError, match="'#locked' is disabled"):
        await registry.run_step(Step(action="notDisabled", selector="#locked"), page)


@pytest.mark.asyncio
async def test_wait_rejects_invalid_timeout(registry, page):
    with pytest.raises(GuardError):
        await registry.run_step(Step(action="wait", args={"timeout": "later"}), page)


@pytest.mark.asyncio
async def test_custom_code_runs_with_surface_and_frame(registry, page):
    await registry.run_step(Step(action="code", args={"codeBlock": "await cy.get('#save')\nframe.touched = True"}), page)

    assert page.touched is True

    with pytest.raises(RuntimeError, match="boom"):
        await registry.run_step(Step(action="code", args={"codeBlock": "raise RuntimeError('boom')"}), page)
