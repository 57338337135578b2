from costengine.models import ElementInstance
from costengine.revision import ChangeType, compare_takeoff_runs
from costengine.structural import compute_structural_takeoff


def test_identical_runs_have_no_changes(grid, templates, instances, settings):
    run = compute_structural_takeoff(grid, templates, instances, settings).takeoff_lines
    delta = compare_takeoff_runs(run, run)

    assert not delta.has_changes
    assert delta.quantity_changes == []
    assert delta.unchanged_elements == ['B1-1', 'C1-1', 'F1-1', 'S1-1']


def test_added_removed_and_modified(grid, templates, instances, settings):
    previous = compute_structural_takeoff(grid, templates, instances, settings).takeoff_lines

    revised = [i for i in instances if i.id != 'F1-1']
    revised[0] = ElementInstance(id='B1-1', template_id='B1', placement={'grid_ref': ['A-D', '1'], 'level_id': 'GF'})
    revised.append(ElementInstance(id='F1-2', template_id='F1', placement={'grid_ref': ['C', '3'], 'level_id': 'GF'}))
    current = compute_structural_takeoff(grid, templates, revised, settings).takeoff_lines

    delta = compare_takeoff_runs(previous, current)

    assert delta.added_elements == ['F1-2']
    assert delta.removed_elements == ['F1-1']
    assert delta.modified_elements == ['B1-1']
    assert delta.unchanged_elements == ['C1-1', 'S1-1']

    by_id = {c.line_id: c for c in delta.quantity_changes}
    assert by_id['B1-1_concrete'].change_type == ChangeType.MODIFIED
    assert by_id['B1-1_concrete'].previous_quantity == 0.95
    assert by_id['F1-1_concrete'].change_type == ChangeType.REMOVED
    assert by_id['F1-2_concrete'].change_type == ChangeType.ADDED

    # Footing moved, same size: concrete nets to zero
    assert by_id['F1-2_concrete'].delta + by_id['F1-1_concrete'].delta == 0


def test_net_change_by_unit(grid, templates, instances, settings):
    previous = compute_structural_takeoff(grid, templates, instances, settings).takeoff_lines
    current = [line for line in previous if line.source_element_id != 'S1-1']
    delta = compare_takeoff_runs(previous, current)

    net = delta.net_change_by_unit()
    assert net['m²'] == -48.0
    assert delta.to_dict()['removed_elements'] == ['S1-1']
