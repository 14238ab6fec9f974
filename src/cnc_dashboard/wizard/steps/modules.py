"""
Modules Step

Choose which backend modules are used and where their data lives.
"""

from dataclasses import replace
from typing import TYPE_CHECKING

from cnc_dashboard.wizard.models import (
    MODULE_MODES,
    CompanyFeatures,
    DraftPatch,
    MatrixFeatures,
    MatrixPaths,
)
from cnc_dashboard.wizard.validators import get_file_type_description, prompt_validator

if TYPE_CHECKING:
    from cnc_dashboard.wizard.interactive import InteractiveWizard


def modules_step(wizard: "InteractiveWizard") -> bool:
    """Select modules and configure each enabled one.

    Returns:
        True to continue, False to abort
    """
    ui = wizard.ui
    draft = wizard.controller.draft
    current = draft.company_features

    wizard.console.print("[bold]Which modules does your shop use?[/bold]")
    features = CompanyFeatures(
        json_scanner=ui.prompt_confirm("JSON Analyzer (program scanning)", default=current.json_scanner),
        tool_manager=ui.prompt_confirm("Matrix Tool Manager (tool inventory)", default=current.tool_manager),
        clamping_plate_manager=ui.prompt_confirm(
            "Clamping Plate Manager (fixture plates)", default=current.clamping_plate_manager
        ),
    )

    if not features.any_enabled():
        ui.print_error("Enable at least one module")
        wizard.controller.update(DraftPatch.module_selection(company_features=features))
        return True

    modules = draft.modules

    if features.json_scanner:
        analyzer = modules.json_analyzer
        wizard.console.print()
        wizard.console.print("[bold cyan]JSON Analyzer[/bold cyan]")
        analyzer = replace(
            analyzer,
            enabled=True,
            mode=ui.prompt_choice("Processing mode", list(MODULE_MODES), default=analyzer.mode),
            data_path=ui.prompt_text("Folder with JSON exports", default=analyzer.data_path,
                                     validator=prompt_validator("directory"), allow_clear=True),
            auto_processing=ui.prompt_confirm("Process new files automatically?",
                                              default=analyzer.auto_processing),
        )
        modules = replace(modules, json_analyzer=analyzer)

    if features.tool_manager:
        matrix = modules.matrix_tools
        wizard.console.print()
        wizard.console.print("[bold cyan]Matrix Tool Manager[/bold cyan]")
        mode = ui.prompt_choice("Processing mode", list(MODULE_MODES), default=matrix.mode)
        excel_processing = ui.prompt_confirm("Read tool inventory from Excel files?",
                                             default=matrix.features.excel_processing)
        json_scanning = ui.prompt_confirm("Read tool usage from JSON files?",
                                          default=matrix.features.json_scanning)

        excel_path = matrix.paths.excel_input_path
        inventory_file = matrix.inventory_file
        if excel_processing:
            excel_path = ui.prompt_text("Folder with Excel inventory files", default=excel_path,
                                        validator=prompt_validator("directory"), allow_clear=True)
            wizard.console.print(f"[dim]{get_file_type_description('excel')}[/dim]")
            inventory_file = ui.prompt_text("Tool inventory file", default=inventory_file,
                                            validator=prompt_validator("excel"), allow_clear=True)

        json_path = matrix.paths.json_input_path
        if json_scanning:
            shared = replace(
                draft,
                company_features=features,
                modules=replace(modules, matrix_tools=replace(matrix, mode=mode)),
            ).shared_json_folder()
            if shared:
                json_path = shared
                ui.print_info(f"Both modules run automatically; JSON files are read from {shared}")
            else:
                if features.json_scanner:
                    wizard.console.print("[dim]Leave empty to use the JSON Analyzer folder.[/dim]")
                json_path = ui.prompt_text("Folder with JSON files", default=json_path,
                                           validator=prompt_validator("directory"), allow_clear=True)

        matrix = replace(
            matrix,
            enabled=True,
            mode=mode,
            inventory_file=inventory_file,
            features=MatrixFeatures(excel_processing=excel_processing, json_scanning=json_scanning),
            paths=MatrixPaths(excel_input_path=excel_path, json_input_path=json_path),
        )
        modules = replace(modules, matrix_tools=matrix)

    if features.clamping_plate_manager:
        plates = modules.plates_manager
        wizard.console.print()
        wizard.console.print("[bold cyan]Clamping Plate Manager[/bold cyan]")
        plates = replace(
            plates,
            enabled=True,
            mode=ui.prompt_choice("Processing mode", list(MODULE_MODES), default=plates.mode),
            models_path=ui.prompt_text("Folder with plate CAD models", default=plates.models_path,
                                       validator=prompt_validator("directory"), allow_clear=True),
            plate_info_file=ui.prompt_text("Plate information file (.xlsx, .xls, .csv)",
                                           default=plates.plate_info_file,
                                           validator=prompt_validator("plate"), allow_clear=True),
        )
        modules = replace(modules, plates_manager=plates)

    # Keep the module flags in line with the toggles
    modules = replace(
        modules,
        json_analyzer=replace(modules.json_analyzer, enabled=features.json_scanner),
        matrix_tools=replace(modules.matrix_tools, enabled=features.tool_manager),
        plates_manager=replace(modules.plates_manager, enabled=features.clamping_plate_manager),
    )

    wizard.controller.update(DraftPatch.module_selection(company_features=features, modules=modules))
    return True
